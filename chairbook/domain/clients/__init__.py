"""
Clients Domain

Client CRUD plus visit tracking: completed visits, cancellations and
reminders are written to the client history and mirrored in the client's
counters. The scheduling domain reports into it through ClientService.
"""
