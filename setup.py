from setuptools import setup, find_packages

setup(
    name="core-calendar-dedup",
    version="1.0.0",
    description="Duplicate Calendar Event Finder by CORE SYSTEMS",
    author="CORE SYSTEMS",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "icalendar>=5.0",
        "caldav>=1.3",
        "google-api-python-client>=2.0",
        "google-auth>=2.0",
        "google-auth-oauthlib>=1.0",
        "python-dateutil>=2.8",
        "tzdata; platform_system == 'Windows'",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "gui_scripts": [
            "core-calendar-dedup=calendar_dedup.main:main",
        ],
    },
)
