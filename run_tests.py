#!/usr/bin/env python3
"""Test runner script for the bootkit test suite"""

import os
import sys
import subprocess
import argparse
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent
TESTS_DIR = PROJECT_ROOT / 'tests'


def main():
    """Main test runner function"""
    parser = argparse.ArgumentParser(description='bootkit Test Runner')

    # Test selection options
    parser.add_argument('--unit', action='store_true',
                       help='Run only unit tests')
    parser.add_argument('--integration', action='store_true',
                       help='Run only integration tests')
    parser.add_argument('--slow', action='store_true',
                       help='Include slow tests')
    parser.add_argument('--coverage', action='store_true',
                       help='Generate coverage report')
    parser.add_argument('--html-coverage', action='store_true',
                       help='Generate HTML coverage report')

    # Test filtering
    parser.add_argument('--core', action='store_true',
                       help='Test only core modules')
    parser.add_argument('--cli', action='store_true',
                       help='Test only the command line interface')

    # Output options
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Verbose output')
    parser.add_argument('--quiet', '-q', action='store_true',
                       help='Quiet output')
    parser.add_argument('--junit-xml', metavar='FILE',
                       help='Generate JUnit XML report')

    parser.add_argument('--timeout', type=int, default=300, metavar='SECONDS',
                       help='Global test timeout (default: 300s)')

    # Development options
    parser.add_argument('--pdb', action='store_true',
                       help='Drop into debugger on failures')
    parser.add_argument('--lf', '--last-failed', action='store_true',
                       help='Run only tests that failed last time')
    parser.add_argument('--ff', '--failed-first', action='store_true',
                       help='Run failed tests first')

    # Path options
    parser.add_argument('paths', nargs='*',
                       help='Specific test paths to run')

    args = parser.parse_args()

    # Build pytest command
    cmd = [sys.executable, '-m', 'pytest']

    markers = []

    if args.unit:
        markers.append('unit')
    elif args.integration:
        markers.append('integration')

    if not args.slow:
        markers.append('not slow')

    if args.core:
        markers.append('core')
    if args.cli:
        markers.append('cli')

    if markers:
        cmd.extend(['-m', ' and '.join(markers)])

    if args.coverage or args.html_coverage:
        cmd.append('--cov=bootkit')
        cmd.append('--cov-report=term')

        if args.html_coverage:
            cmd.append('--cov-report=html:tests/coverage_html')

        if args.coverage:
            cmd.append('--cov-report=xml:tests/coverage.xml')

    if args.verbose:
        cmd.append('-v')
    elif args.quiet:
        cmd.append('-q')

    if args.junit_xml:
        cmd.extend(['--junit-xml', args.junit_xml])

    cmd.extend(['--timeout', str(args.timeout)])

    if args.pdb:
        cmd.append('--pdb')

    if args.lf:
        cmd.append('--lf')
    elif args.ff:
        cmd.append('--ff')

    if args.paths:
        cmd.extend(args.paths)
    else:
        cmd.append(str(TESTS_DIR))

    # Keep the developer's real bootkit home out of the test run
    env = os.environ.copy()
    env['PYTHONPATH'] = str(PROJECT_ROOT)
    env['BOOTKIT_LOGGING_CONSOLE_LEVEL'] = 'DEBUG'
    env.pop('BOOTKIT_HOME', None)
    env.pop('BOOTKIT_PACKAGE_MANAGER', None)

    print(f"Running bootkit Test Suite")
    print(f"Project Root: {PROJECT_ROOT}")
    print(f"Test Directory: {TESTS_DIR}")
    print(f"Command: {' '.join(cmd)}")
    print("-" * 60)

    try:
        result = subprocess.run(cmd, env=env, cwd=str(PROJECT_ROOT))

        print("-" * 60)
        if result.returncode == 0:
            print("✅ All tests passed!")
        else:
            print("❌ Some tests failed!")
            print(f"Exit code: {result.returncode}")

        if args.html_coverage:
            coverage_path = PROJECT_ROOT / 'tests' / 'coverage_html' / 'index.html'
            print(f"📊 HTML coverage report: {coverage_path}")

        return result.returncode

    except KeyboardInterrupt:
        print("\n🛑 Test run interrupted by user")
        return 130
    except OSError as e:
        print(f"❌ Test runner error: {e}")
        return 1


def check_dependencies():
    """Check if required test dependencies are available"""
    required_packages = ['pytest', 'pytest-cov', 'pytest-mock', 'pytest-timeout']
    missing_packages = []

    for package in required_packages:
        try:
            __import__(package.replace('-', '_'))
        except ImportError:
            missing_packages.append(package)

    if missing_packages:
        print("❌ Missing required test dependencies:")
        for package in missing_packages:
            print(f"   - {package}")
        print("\nInstall with: pip install -e '.[test]'")
        return False

    return True


if __name__ == '__main__':
    if not check_dependencies():
        sys.exit(1)

    sys.exit(main())
