from setuptools import setup, find_packages

setup(
    name="speechbloom",
    version="0.1.0",
    description="Live microphone transcription with a pretrained Whisper model",
    author="",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "soundfile>=0.12.0",
        "transformers>=4.30.0",
        "torch>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "speechbloom=speechbloom.main:main",
        ],
    },
)
