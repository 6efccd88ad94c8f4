#
# Copyright (c) 2025 by Delphix. All rights reserved.
#
