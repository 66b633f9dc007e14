"""console-service: run one program as a Windows service or as a console process."""

__version__ = "0.1.0"
