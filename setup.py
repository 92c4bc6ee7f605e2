"""Packaging for the agent orchestrator (engine, API and agentctl CLI)

    pip install -e ".[dev]"     # editable, with pytest
    agentctl health             # validate the bundled agents
    agent-api                   # serve /agents on settings.api_port
"""

from setuptools import setup, find_packages
from pathlib import Path

readme_file = Path(__file__).parent / "README.md"
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")

# Runtime dependencies live in backend/requirements.txt
requirements_file = Path(__file__).parent / "backend" / "requirements.txt"
requirements = []
if requirements_file.exists():
    with open(requirements_file, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#'):
                requirements.append(line)

setup(
    name="agent-orchestrator",
    version="1.0.0",
    description="Capability orchestration engine: agent registry, routing, workflows and health-gated hybrid execution",
    long_description=long_description,
    long_description_content_type="text/markdown",
    # backend/ holds the app packages; shared/ sits beside it at the repo root
    packages=(
        find_packages(where="backend", exclude=["tests", "tests.*"])
        + find_packages(include=["shared", "shared.*"])
    ),
    package_dir={"": "backend", "shared": "shared"},
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=24.0.0",
            "flake8>=7.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "agentctl=cli.__main__:main",
            "agent-api=app.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="agents orchestration workflow fastapi",
)
