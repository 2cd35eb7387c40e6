from setuptools import setup, find_packages
from pathlib import Path

setup(
    name="inkpage",
    version=Path("./inkpage/VERSION").read_text().strip(),
    description="Per-page vector annotations for rendered documents",
    packages=find_packages(include=["inkpage", "inkpage.*"]),
    package_data={"inkpage": ["VERSION"]},
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "opencv-python-headless",
        "easydict",
        "requests",
        "fastapi",
        "pydantic>=2",
        "uvicorn",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": ["inkpage=inkpage.cli:main"],
    },
)
