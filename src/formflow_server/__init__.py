"""formflow_server: FastAPI backend for conversational form applications.

Hosts the active form schema, stores application answers and exposes a
stateless step API driven by the formflow engine.
"""
