from setuptools import setup, find_packages

setup(
    name="timesling",
    version="0.1.0",
    packages=find_packages(include=["timesling", "timesling.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "PyYAML",  # app.yaml runtime configuration
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "timesling=timesling.main:main"
        ]
    },
)
