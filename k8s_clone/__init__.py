# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""Copy or delete Kubernetes resources between namespaces and clusters."""

__version__ = "1.0.0"
