"""Mute/solo bookkeeping for sequencer rows."""
from __future__ import annotations

from typing import Dict, Mapping

from domain.models import ChannelState

ChannelStates = Mapping[str, ChannelState]


def any_soloed(states: ChannelStates) -> bool:
    return any(state.solo for state in states.values())


def is_channel_active(states: ChannelStates, channel: str) -> bool:
    """Return whether ``channel`` should play given every row's mute/solo flags.

    Unknown channels are active. A soloed channel always plays; once any
    channel is soloed, channels without solo are silent.
    """

    state = states.get(channel)
    if state is None:
        return True
    if state.mute and not state.solo:
        return False
    if any_soloed(states) and not state.solo:
        return False
    return True


def toggle_mute(states: ChannelStates, channel: str) -> Dict[str, ChannelState]:
    current = states.get(channel, ChannelState())
    return {**states, channel: current.model_copy(update={"mute": not current.mute})}


def toggle_solo(states: ChannelStates, channel: str) -> Dict[str, ChannelState]:
    current = states.get(channel, ChannelState())
    return {**states, channel: current.model_copy(update={"solo": not current.solo})}
