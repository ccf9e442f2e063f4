[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "servicefinder"
version = "1.0.0"
description = "A small WSGI API where service providers publish postings and customers browse them."
requires-python = ">=3.10"
keywords = ["wsgi", "api", "marketplace", "services", "postings", "sessions"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "werkzeug>=3.0",
    "bcrypt>=4.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
service-finder = "servicefinder.server:main"

[tool.hatch.build.targets.wheel]
packages = ["servicefinder"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
