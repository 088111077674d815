from os import path

from setuptools import setup

this_dir = path.abspath(path.dirname(__file__))
with open(path.join(this_dir, "README.md"), encoding="utf8") as f:
    long_description = f.read()

setup(
    name="MediFlow",
    description="MediFlow - in-process mediator for request/response and notification messages",
    long_description=long_description,
    long_description_content_type="text/markdown",
    version="0.1",
    license="MIT",
    author="MediFlow Developers",
    packages=["mediflow", "mediflow.test", "mediflow.core"],
    package_data={
        "mediflow": ["py.typed"],
        "mediflow.core": ["py.typed"],
        "mediflow.test": ["py.typed"],
    },
    keywords=["mediflow", "mediator", "cqrs", "fastapi"],
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "uvicorn",
        "colorama",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
            "pydantic",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
    entry_points={
        "console_scripts": [
            "mediflow = mediflow.command:console_main",
        ]
    },
)
