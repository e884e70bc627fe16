from setuptools import find_packages, setup


def read_requirements():
    with open("requirements.txt") as f:
        return [line for line in f.read().splitlines() if line.strip()]


setup(
    name="kdeconnect-palette",
    version="0.3.0",
    description="Command palette and battery status line for KDE Connect devices",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.10",
    install_requires=read_requirements(),
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "kdeconnect-palette=kdeconnect_palette.main:main",
        ],
    },
    packages=find_packages(include=["kdeconnect_palette", "kdeconnect_palette.*"]),
    include_package_data=True,
)
