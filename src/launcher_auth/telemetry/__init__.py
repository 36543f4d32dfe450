"""Telemetry for launcher-auth.

- system: Operational logger (stderr + optional JSONL file)
- debug: Provider HTTP request/response logging with credential redaction
"""
