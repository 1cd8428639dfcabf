"""agentprep - attach diagnostic agents to running JVM processes."""

__version__ = "0.1.0"
