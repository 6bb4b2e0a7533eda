"""Weekly university schedule: local timetable, HTML export/restore and cloud sync."""
