from setuptools import setup, find_packages

setup(
    name="mrf-builder",
    version="1.0.0",
    description="Out-of-network allowed amounts MRF builder",
    author="MRF Builder Team",
    packages=find_packages(include=["mrf_builder", "mrf_builder.*"]),
    py_modules=["mrf_cli"],
    install_requires=[
        "pandas>=2.0.0",
        "pydantic>=2.5.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "mrf-builder=mrf_cli:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
