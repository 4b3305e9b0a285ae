"""
meteor-codemod: rewrite Meteor 2.x callback/sync API usage to Meteor 3
async/await.

    from meteor_codemod import Orchestrator, build_default_registry

    orchestrator = Orchestrator(build_default_registry())
    result = orchestrator.transform_source(source, "server/methods.js")
"""

from .engine import (
    EngineConfig, Orchestrator, Registry, TransformResult, build_default_registry, load_config
)

__version__ = "0.1.0"

__all__ = [
    "EngineConfig", "Orchestrator", "Registry", "TransformResult",
    "build_default_registry", "load_config", "__version__",
]
