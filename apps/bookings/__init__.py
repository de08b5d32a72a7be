"""Bookings app package.

This app owns the hostel booking lifecycle: quoting a room, turning a
verified gateway payment into a PAID booking, administrative allocation
and overrides, and cancellation. Admission to a room is serialized by a
row lock on the room, and the database constraints on bookings and
receipts back up every check made in Python.
"""
