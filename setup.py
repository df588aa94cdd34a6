from setuptools import find_packages, setup

setup(
    name="strategy-backtest",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11",
    install_requires=["python-dotenv"],
    extras_require={"test": ["pytest"]},
)
