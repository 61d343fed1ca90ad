from setuptools import setup, find_packages

setup(
    name="edt3d",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "torch>=1.9.0",
        "numpy",
        "pyyaml",
        "tifffile",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "edt3d=edt3d.cli:main",
        ],
    },
    author="Volume Cartographer Team",
    author_email="info@volumecartographer.com",
    description="Exact 3D Euclidean distance transform of binary volumes (Saito-Toriwaki)",
    keywords="distance transform, euclidean, volume, saito, toriwaki",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
    ],
    python_requires=">=3.8",
)
