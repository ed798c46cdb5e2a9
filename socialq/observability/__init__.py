"""Observability - logging and in-process telemetry"""
