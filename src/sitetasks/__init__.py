"""Task modules live here.

One module per asset type (`meta.py`, `pages.py`, ...). Decorate task functions with
`@sitebuild.task(name=..., inputs=[...], outputs=[...])`; the CLI discovers them by
importing every module of this package.

Do not implement logic here unless it's shared helpers; transformations belong in
`sitetools`.
"""
