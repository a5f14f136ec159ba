# -*- coding: utf-8 -*-
"""Diary domain (entries, supplement notes, nutrition snapshots).

Each collection lives in its own table and is persisted independently; the
record store keeps the three consistent by entry id.
"""
