"""Configuration constants.

Protocol values and record vocabulary that must not be user-configurable.
For configurable values, see models.py.
"""

PREPARE_JVM_TYPE = "jvm"
"""Preparation type tag for JVM sandbox agents."""

STATUS_CREATED = "Created"
STATUS_RUNNING = "Running"
STATUS_ERROR = "Error"

CONNECTION_REFUSED_MARKER = "connection refused"
"""Lower-cased failure signature that triggers side-channel port recovery."""

SANDBOX_TOKEN_FILE = ".sandbox.token"
"""Per-user token file the sandbox agent writes once its server is bound."""

PROGRAM_MODULE = "agentprep"
"""Module run via ``python -m`` for detached re-invocation."""

SUCCESS_CODE = 200

PORT_MIN = 1
PORT_MAX = 65535
"""Valid agent port range."""
