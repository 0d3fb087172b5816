"""
Petri Net Workbench - Source Package

Main modules:
- classes: Places, transitions, arcs, markings and alignment value types
- parser: Canonical JSON model and format dispatch
- validation: Structural model validation
- exceptions: ParseError and ReplayError
- pnml, dot, mermaid: Text format converters
- firing: Enabled check, firing and sequence replay
- priority_queue: Comparator-driven binary min-heap
- alignment: Cost-optimal trace alignment (Dijkstra) and fitness
- trace: Resolution of trace references to transition ids
- editing: Pure model editing helpers
- simulation: Random token-game runs
- event_log: Event-log import into trace lists
- conformance_checking: Alignment-based conformance over whole logs
- petri_model: pm4py conversion and discovery
- sample: Demonstration net
- utils: Cost functions, parameter validation, logging setup
- cli: Command-line entry point
"""

__version__ = "1.0.0"
