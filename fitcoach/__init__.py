# -*- coding: utf-8 -*-
"""fitcoach: offline-first data layer and server helpers for a coaching app."""

__version__ = "0.1.0"
