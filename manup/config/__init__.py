# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Configuration loading for ManUp.

This module loads the gate settings (config URL, app name and version,
staleness window, cache and log locations, debug overrides) from built-in
defaults, an optional YAML file, and programmatic overrides.

Public API:

- load_gate_config: Load and merge settings into a GateConfig
- gate_config_from_dict: Build a GateConfig from an in-memory mapping
- GateConfig, DebugOptions: The resulting settings

Example:
    Basic usage:

        from pathlib import Path
        from manup.config import load_gate_config

        config = load_gate_config(Path("manup.yaml"))
        print(config.config_url)

"""

from .loader import DebugOptions, GateConfig, gate_config_from_dict, load_gate_config

__all__ = ["DebugOptions", "GateConfig", "gate_config_from_dict", "load_gate_config"]
