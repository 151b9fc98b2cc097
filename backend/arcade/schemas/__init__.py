"""Pydantic schemas — HTTP request/response bodies and provider payload shapes."""
