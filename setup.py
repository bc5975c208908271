"""
Hybrid RAG Setup Script

Install with: pip install -e .
Tests: pip install -e ".[test]"
"""

from setuptools import setup, find_packages

setup(
    name='hybrid-rag',
    version='0.1.0',
    description='Hybrid retrieval engine combining vector similarity and an entity knowledge graph',
    packages=find_packages(include=['hybridrag', 'hybridrag.*']),
    package_data={
        'hybridrag.config': ['*.yaml'],
    },
    install_requires=[
        'fastapi>=0.104.0',
        'uvicorn[standard]>=0.24.0',
        'python-multipart>=0.0.6',
        'pydantic>=2.5.0',
        'pyyaml>=6.0.1',
        'numpy>=1.26.0',
        'aiohttp>=3.9.0',
        'click>=8.2.0',
        'python-dotenv>=1.0.0',
        'structlog>=23.2.0',
        'falkordb>=1.0.0',
        'qdrant-client>=1.10.0',
        'sentence-transformers>=2.2.0',
        'torch>=2.0.0',
        'networkx>=3.0',
        'pymupdf>=1.23.0',
        'langchain-text-splitters>=0.2.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.21.0',
            'httpx>=0.25.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'hybridrag=hybridrag.cli:main',
        ],
    },
    python_requires='>=3.11',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Topic :: Text Processing :: Indexing',
    ],
)
