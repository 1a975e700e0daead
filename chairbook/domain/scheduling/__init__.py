"""
Scheduling Domain

Appointments, single or recurring, and the occurrences they produce.

Structure:
- recurrence.py    # Declarative rule -> occurrence instants (dateutil.rrule)
- overrides.py     # Skip/move exceptions keyed by (appointment, instant)
- expander.py      # Appointments + exceptions -> occurrences in a window
- availability.py  # Per-staff conflict checking
- lifecycle.py     # pending -> done / cancelled transitions and side effects
- pricing.py       # Final price from list price, payment method and discount
- service.py       # Mutations: create, edit, move, cancel, status, delete
- repository.py    # Appointment and exception persistence
- router.py        # /appointments endpoints
"""
