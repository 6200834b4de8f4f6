"""nodebuild command line interface.

Main Components
---------------
cli.py : Loads a YAML configuration, builds every element it declares and
         reports the diagnostics

Usage Examples
--------------
::

    nodebuild -c config.yaml --module myapp.plugins
    nodebuild -c config.yaml --module myapp.plugins --set level=debug --strict
"""
