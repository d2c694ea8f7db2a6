from setuptools import setup, find_packages

setup(
    name="happy-nemesis",
    version="0.1.0",
    description="Fault injection (network partitions, clock skew, process pauses) for distributed systems tests",
    author="adamfilli",
    packages=find_packages(include=["happynemesis", "happynemesis.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
        "paramiko",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
