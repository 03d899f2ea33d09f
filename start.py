#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Entry Point for running the lab from a source checkout."""

import sys

import promisesim

if __name__ == "__main__":
    sys.exit(promisesim.main())
