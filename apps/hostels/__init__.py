"""Hostels app package.

Catalog data for accommodation: hostels, rooms, academic seasons and the
fee list that prices a room for a season. The booking flow reads this
catalog but never mutates it.
"""
