"""安装模块

- resolver.py: 目标类别 -> 前缀目录
- installer.py: 映射执行与回滚策略
"""

from recipekit.services.install.installer import Installer
from recipekit.services.install.resolver import DestinationResolver, PrefixLayout

__all__ = ["Installer", "DestinationResolver", "PrefixLayout"]
