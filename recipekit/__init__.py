"""recipekit - 声明式包构建/安装描述符"""

__version__ = "0.1.0"
