"""
Kubeguard - In-cluster workload agent

An agent that receives remote commands from a control backend and keeps
track of which container images are running under which workloads.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- identifiers: Workload, secret and instance identifiers
- k8s: Cluster access (list, watch, owner resolution)
- watcher: Live image-to-workload index
- resolver: Command target resolution and namespace policy
- api: Shared data models
- executor: Command channel and command routing
- config: Environment configuration
"""

__version__ = "1.0.0"
