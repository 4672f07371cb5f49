"""
Torch backend selection and classifier loading.

The classifier is treated as an opaque TorchScript module: this package
only picks a device, loads the file, warms it up and hands it out.
"""
