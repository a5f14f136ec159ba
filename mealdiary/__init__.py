# -*- coding: utf-8 -*-
"""Meal diary backend: photo entries, nutrition extraction and trends."""
