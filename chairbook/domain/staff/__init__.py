"""Staff domain - staff members and their weekly working schedules"""
