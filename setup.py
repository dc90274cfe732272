from setuptools import setup

version = '0.1'

with open("README.md", "r", encoding="utf-8") as f:
    long_descr = f.read()

setup(
    name='pympdmonitor',
    packages=['pympdmonitor'],
    version=version,
    license='Apache 2.0',
    description='Poll an MPD server and fire player, playlist, volume and output change events',
    long_description=long_descr,
    long_description_content_type='text/markdown',
    author='johnno',
    author_email='johnno@example.com',
    url='https://github.com/johnno/pympdmonitor',
    download_url=f'https://github.com/johnno/pympdmonitor/archive/{version}.tar.gz',
    keywords=['MPD', 'Music Player Daemon', 'monitor'],
    python_requires='>=3.9',
    install_requires=[],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Multimedia :: Sound/Audio :: Players',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3.10'
    ],
)
