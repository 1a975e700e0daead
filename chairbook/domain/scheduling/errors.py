"""Scheduling domain errors, mapped to HTTP responses in main.py"""


class SchedulingError(ValueError):
    """Base class for rejected scheduling operations"""

    status_code = 400


class InvalidRecurrenceError(SchedulingError):
    pass


class SlotUnavailableError(SchedulingError):
    status_code = 409

    def __init__(self, message: str = "That time slot is already taken by another appointment"):
        super().__init__(message)


class CancellationWindowError(SchedulingError):
    def __init__(self, hours: int):
        super().__init__(
            f"Appointments that started more than {hours} hours ago cannot be cancelled. "
            "They can only be marked as completed."
        )
        self.hours = hours


class InvalidStatusTransitionError(SchedulingError):
    pass


class AppointmentNotFoundError(SchedulingError):
    status_code = 404

    def __init__(self, appointment_id):
        super().__init__(f"Appointment {appointment_id} not found")
        self.appointment_id = appointment_id
