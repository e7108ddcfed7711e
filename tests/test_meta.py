from cqbot.meta import MetaInfo, __version__
from tests.base import *


async def test_meta_info() -> None:
    info = MetaInfo.get_all()
    assert info["VER"] == __version__
    assert info["PROJ_NAME"] == "cqbot"
    assert info["AUTHOR"] == "cqbot contributors"


async def test_meta_readonly() -> None:
    with pt.raises(AttributeError):
        MetaInfo.VER = "0.0.0"  # type: ignore[misc]
