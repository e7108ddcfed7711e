import os
import sys
from typing import Any


class ReadOnly(type):
    def __new__(cls, name, bases, dic):
        _class = super().__new__(cls, name, bases, dic)
        super().__setattr__(
            _class,
            "__cvars__",
            tuple(k for k in dic if not k.startswith("__")),
        )
        return _class

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__cvars__:  # type: ignore[attr-defined]
            raise AttributeError(f"{self.__name__} 类的类属性 {name} 是只读的，无法修改")
        return super().__setattr__(name, value)


__version__ = "1.2.0"


class MetaInfo(metaclass=ReadOnly):
    """元信息类

    一般无需实例化该类，直接使用本类的属性即可
    """

    VER: str = __version__
    """cqbot 版本"""

    PROJ_NAME: str = "cqbot"
    """cqbot 项目名称"""

    PROJ_DESC: str = "A typed asyncio client for the CQHTTP (OneBot v11) bot control protocol."
    """cqbot 项目描述"""

    AUTHOR: str = "cqbot contributors"
    """cqbot 作者"""

    PLATFORM: str = sys.platform
    """当前系统平台"""

    PY_VER: str = sys.version
    """当前 python 版本"""

    ENV: os._Environ[str] = os.environ
    """当前运行的环境变量"""

    @classmethod
    def get_all(cls) -> dict[str, Any]:
        """以字典形式获取所有元信息

        :return: 包含所有元信息的，属性名为键的字典
        """
        return {k: v for k, v in cls.__dict__.items() if not k.startswith("__")}
