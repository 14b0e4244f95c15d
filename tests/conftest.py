"""
Shared OCL sources for the test suite.
"""

import pytest

from ocl import parse_ocl_wrapper

DEPLOYMENT_PROCESS = '''
step "back-up-client" {
    name = "Back up client"
    number_value = 10
    ratio = 0.5
    bool_value = false
    properties = {
        Octopus.Action.MaxParallelism = "100"
        Octopus.Action.TargetRoles = "pos-client"
    }

    action "back-up-client" {
        action_type = "Octopus.Script"
        properties = {
            Octopus.Action.Script.ScriptBody = <<-EOT
                Write-Host "backing up"

                Start-Sleep 2
                EOT
            Octopus.Action.Script.Syntax = "PowerShell"
        }
    }

    action "upgrade-client" {
        action_type = "Octopus.Script"

        packages "Pos.Client" {
            feed = "built-in"
            properties = {
                Purpose = ""
            }
            properties = {
                Purpose = "Second properties"
            }
        }

        packages "Pos.Client" {
            feed = "external"
        }
    }
}

step "back-up-server" {
    name = "Back up server"
    tags = ["a", "b"]

    action {
        action_type = "Octopus.Script"
    }
}

int_attribute = 1
'''


@pytest.fixture
def deployment_source():
    return DEPLOYMENT_PROCESS


@pytest.fixture
def deployment_view():
    return parse_ocl_wrapper(DEPLOYMENT_PROCESS)
