from setuptools import setup, find_packages
import re

# Read version from shiftpay/__init__.py
with open('shiftpay/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='shift-pay',
    version=version,
    packages=find_packages(include=['shiftpay', 'shiftpay.*']),
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0,<2',
        ],
        'test': [
            'pytest>=7.0',
            'hypothesis>=6.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'shift-pay=shiftpay.cli.__main__:main',
            'shift-pay-mcp=shiftpay.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Shift timer and pay calculator.',
    python_requires='>=3.10',
)
