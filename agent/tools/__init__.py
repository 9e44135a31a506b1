from agent.tools.model_catalog import list_available_models

__all__ = ["list_available_models"]
