# -*- coding: utf-8 -*-
"""Nutrition domain (trend aggregation over diary nutrition snapshots).

The underlying snapshots are written by `mealdiary/diary/store.py`; this
package only reads them.
"""
