"""
Static catalogs compiled into the package.

    from melos_sidebar.core.data import RECOMMENDED_SCRIPTS
"""

from melos_sidebar.core.data.recommendations import RECOMMENDED_SCRIPTS

__all__ = ["RECOMMENDED_SCRIPTS"]
