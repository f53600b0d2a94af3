from setuptools import setup, find_packages
setup(
    name="poi_editor",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.100",
        "pydantic>=2",
        "shapely>=2",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    entry_points={
        'console_scripts': [
            'poi_editor=poi_editor.__main__:main'
        ]
    }
)
