from setuptools import setup, find_packages

setup(
    name="RMPower",
    version="0.1.0",
    packages=find_packages(include=["rmpower", "rmpower.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "statsmodels",
        "joblib",
    ],
    extras_require={
        "progress": ["tqdm"],
        "test": ["pytest", "tqdm"],
    },
    author="Paweł Lenartowicz",
    description="Monte Carlo sample-size estimation for repeated-measures group x time designs",
)
