"""Reviews domain - client ratings on completed bookings and their moderation"""
