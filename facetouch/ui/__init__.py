# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Presentation layer."""

from facetouch.ui.window import TouchWindow, draw_hud

__all__ = ["TouchWindow", "draw_hud"]
