#!/usr/bin/env python3

from setuptools import setup

setup(name='ed2ksum',
      version='0.1',
      author='Jonas Bengtsson',
      description='Compute ed2k hashes of files',
      author_email='jonas@bengtsson.cc',
      package_dir={'ed2ksum': 'ed2ksum'},
      packages=['ed2ksum'],
      install_requires=['pycryptodome'],
      scripts=['scripts/ed2ksum', 'scripts/ed2ksum-db'],
      license="GPLv3",
      long_description="""
        ed2ksum computes the ed2k hash of files, the MD4 based hash used to
        identify files on eDonkey style networks and AniDB.  Files whose size
        is an exact multiple of the 9500 KiB block size hash differently in
        old and new clients, so the boundary policy has to be chosen
        explicitly.  Computed hashes are cached in a local database and reused
        until the file changes.
        """)
