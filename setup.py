import setuptools

setuptools.setup(
    name="oadcrc",
    version="1.0.0",
    description=("CRC-16 verification and patching for TI CC254x OAD "
                 "firmware images"),
    license="Apache Software License",
    packages=setuptools.find_packages(exclude=["tests"]),
    install_requires=[
        'intelhex>=2.2.1',
        'click',
        'PyYAML>=5.1',
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "oadcrc=oadcrc.main:oadcrc",
            "crc16=oadcrc.main:check",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 4 - Beta",
        "Topic :: Software Development :: Build Tools",
        "License :: OSI Approved :: Apache Software License",
    ],
)
