# -*- coding: utf-8 -*-
"""Sync queue (ordered log of pending mutations) and its replay manager."""
