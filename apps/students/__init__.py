"""Students app package.

Student records and their school-fee bills. The booking flow consults
``StudentEligibilityService`` before quoting a room.
"""
