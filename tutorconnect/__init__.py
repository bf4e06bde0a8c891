"""TutorConnectPro: REST backend connecting students with tutors."""

__version__ = "0.1.0"
