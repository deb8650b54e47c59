"""
SlotBook: weekly teaching-slot booking with cross-teacher conflict checks.
"""
