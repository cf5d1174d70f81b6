"""
dronepilot - Let a language model fly a drone, one approved action at a time.

This library drives an interactive loop between a completion service and a
drone control server:

- Situation snapshots (camera frame, telemetry, weather briefing)
- A fixed tool catalog with strict, typed parameters
- A fail-closed human approval gate in front of every action
- Continuation-token based context across turns

Quick Start:
    $ export OPENAI_API_KEY=...
    $ export DRONEPILOT_DRONE_IP_PORT=192.168.1.20:8080
    $ dronepilot
"""

from dronepilot.config import Settings, get_settings
from dronepilot.conversation import ConversationDriver

__version__ = "0.1.0"
__all__ = ["ConversationDriver", "Settings", "get_settings"]
