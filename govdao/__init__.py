"""
GovDAO Package

Token-weighted governance over a simulated host chain. Core imports are
lazily loaded; for direct module access, import from submodules:

    from govdao.chain import Chain
    from govdao.governance import Governor, TimelockController, deploy_dao
    from govdao.tokens import GovernanceToken
"""

__version__ = "0.1.0"


# Lazy imports so that importing the package does not pull in every module
def __getattr__(name):
    """Lazy module loading."""
    if name == 'Chain':
        from .chain import Chain
        return Chain
    elif name == 'deploy_dao':
        from .governance import deploy_dao
        return deploy_dao
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'govdao' has no attribute {name!r}")

__all__ = ['Chain', 'deploy_dao', 'load_config']
