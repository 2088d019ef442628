"""
PocketCal Web Portal Launcher
Simple script to start the web server
"""
import sys

print("Starting PocketCal Web Portal...")
print()

try:
    import api
except ImportError as e:
    print(f"Error importing modules: {e}")
    print("\nMake sure you have installed the required dependencies:")
    print("  pip install -e .")
    sys.exit(1)


if __name__ == "__main__":
    api.main()
