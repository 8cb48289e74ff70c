from setuptools import setup, find_packages

setup(
    name="tiered-vpc",
    version="0.1.0",
    packages=find_packages(exclude=["tests*", "blueprints*", "scripts*"]),
    install_requires=[
        "pulumi>=3.0.0",
        "pulumi-aws>=6.0.0",
        "boto3>=1.26.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    python_requires=">=3.8",
    description="A tiered AWS VPC component built with Pulumi",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
