# ABOUTME: Persistence layer exports
# ABOUTME: JSON collection files and error reports

from .store import JsonCollection, read_json, write_error_report, write_json

__all__ = [
    "JsonCollection",
    "read_json",
    "write_error_report",
    "write_json",
]
