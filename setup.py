import runpy

from setuptools import find_packages, setup

MetaInfo = runpy.run_path("src/cqbot/meta.py")["MetaInfo"]

with open("requirements.txt", encoding="utf-8") as fp:
    required = [line for line in fp.read().splitlines() if line and not line.startswith("#")]
with open("README.md", encoding="utf-8") as fp:
    readme = fp.read()

setup(
    name=MetaInfo.PROJ_NAME,
    version=MetaInfo.VER,
    author=MetaInfo.AUTHOR,
    description=MetaInfo.PROJ_DESC,
    long_description=readme,
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    packages=find_packages("src"),
    package_dir={"": "src"},
    install_requires=required,
    extras_require={"test": ["pytest>=8.0", "pytest-asyncio>=0.24"]},
)
