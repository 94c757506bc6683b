# Planner, orchestrator and the ask service that wires them together
