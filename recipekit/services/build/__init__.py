"""构建模块"""

from recipekit.services.build.executor import BuildExecutor

__all__ = ["BuildExecutor"]
