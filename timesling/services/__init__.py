# -*- coding: utf-8 -*-
"""
Service package for the TimeSling agent.

Groups the collaborators the timer registry talks to: the event bus,
the notification dispatcher, sound playback and logging setup.
"""

__all__ = ["event_bus", "logging", "notifications", "sound"]
