from setuptools import find_packages, setup

setup(
    name="bronze",
    version="0.3.0",
    description="Incremental image derivative generator",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=["Pillow>=9.1", "tqdm"],
    extras_require={
        "heif": ["pillow-heif"],
        "test": ["pytest"],
    },
    entry_points={"console_scripts": ["bronze=bronze.main:main"]},
)
