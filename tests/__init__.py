"""
Pioneer Test Suite.

This package contains pytest tests for the Pioneer agent, its tools and its
sandbox world. Tests are organized by module:

    test_config.py      - PioneerConfig validation and loading
    test_world.py       - World data model tests
    test_sandbox.py     - SandboxWorld rule tests
    test_tools.py       - Compass, spyglass, mapper, forecast, collector
    test_objective.py   - Objective variant and remote codes
    test_scanner.py     - face_target reorientation tests
    test_locator.py     - Least-explored locator and coverage
    test_manager.py     - Backpack valuation and energy rule
    test_planner.py     - Autonomous planner rules
    test_navigator.py   - Destination walker recovery strategies
    test_pilot.py       - Remote pilot byte protocol
    test_controller.py  - Manual pilot commands
    test_bot.py         - Objective state machine scenarios
    test_env.py         - PioneerEnv Gymnasium environment
    test_cli.py         - Command-line entry point

Fixtures are defined in conftest.py and shared across all test modules.
"""
