"""Pluggy hook specifications for keyctl chat bindings.

A binding (console, chat platform, ...) implements ``keyctl_notify`` to
deliver reminders and notices, and may implement the informational hooks
to mirror custody state elsewhere.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("keyctl")
hookimpl = pluggy.HookimplMarker("keyctl")


class KeyctlHookSpec:
    """Hook specifications for the keyctl plugin system."""

    @hookspec
    def keyctl_notify(self, channel_id: str, user_id: str, text: str) -> None:
        """Deliver *text* to *channel_id*, addressed to *user_id*.

        Best effort. Raising signals a delivery failure to the caller.
        """

    @hookspec
    def keyctl_broadcast_presence(self, state_tag: str) -> None:
        """Mirror the presence tag for the current custody state."""

    @hookspec
    def keyctl_post_transition(
        self,
        action: str,
        previous: str,
        current: str,
        holder_id: str | None,
    ) -> None:
        """Called after an action changed the custody state."""
