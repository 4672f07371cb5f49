"""
Image authenticity checks.

`preprocess` turns uploaded bytes into the tensor the classifier expects;
`verify` runs the classifier and maps its score to a verdict.
"""
