"""
Constants and configuration values for Flashbuild.

This module contains the default Android build settings, file names, Gradle
property names and logging settings used throughout the application.
"""

# Application identity (from the Android app module)
DEFAULT_NAMESPACE = "dev.parthprolegend.flashlight"
DEFAULT_APPLICATION_ID = "dev.parthprolegend.flashlight"

# Flutter-provided SDK defaults (flutter.compileSdkVersion etc.)
DEFAULT_COMPILE_SDK = 35
DEFAULT_MIN_SDK = 21
DEFAULT_TARGET_SDK = 35
DEFAULT_NDK_VERSION = "27.0.12077973"
DEFAULT_JAVA_VERSION = "11"
DEFAULT_FLUTTER_SOURCE = "../.."

# Flutter's fallbacks when pubspec.yaml has no version
DEFAULT_VERSION_CODE = 1
DEFAULT_VERSION_NAME = "1.0"

# File and directory names
ANDROID_DIR_NAME = "android"
APP_MODULE_DIR_NAME = "app"
KEY_PROPERTIES_FILE = "key.properties"
LOCAL_PROPERTIES_FILE = "local.properties"
PUBSPEC_FILE = "pubspec.yaml"
CONFIG_FILE_NAME = "flashbuild.yaml"
DIST_DIR_NAME = "dist"
APK_EXTENSION = ".apk"
PROPERTIES_ENCODING = "iso-8859-1"

# Signing properties
STORE_FILE_KEY = "storeFile"
STORE_PASSWORD_KEY = "storePassword"
KEY_PASSWORD_KEY = "keyPassword"
KEY_ALIAS_KEY = "keyAlias"
REQUIRED_SIGNING_KEYS = (
    STORE_FILE_KEY,
    STORE_PASSWORD_KEY,
    KEY_PASSWORD_KEY,
    KEY_ALIAS_KEY,
)
SECRET_MASK = "********"

# local.properties keys written by the Flutter tool
LOCAL_SDK_DIR_KEY = "sdk.dir"
LOCAL_FLUTTER_VERSION_NAME_KEY = "flutter.versionName"
LOCAL_FLUTTER_VERSION_CODE_KEY = "flutter.versionCode"

# Build types
BUILD_TYPE_RELEASE = "release"
BUILD_TYPE_DEBUG = "debug"
DEFAULT_PROGUARD_FILES = (
    "proguard-android-optimize.txt",
    "proguard-rules.pro",
)

# Android Gradle Plugin injected properties
INJECTED_STORE_FILE = "android.injected.signing.store.file"
INJECTED_STORE_PASSWORD = "android.injected.signing.store.password"
INJECTED_KEY_ALIAS = "android.injected.signing.key.alias"
INJECTED_KEY_PASSWORD = "android.injected.signing.key.password"
INJECTED_VERSION_CODE = "android.injected.version.code"
INJECTED_VERSION_NAME = "android.injected.version.name"
SECRET_GRADLE_PROPERTIES = (INJECTED_STORE_PASSWORD, INJECTED_KEY_PASSWORD)
# Gradle reads ORG_GRADLE_PROJECT_<name> environment variables as project properties
GRADLE_PROJECT_ENV_PREFIX = "ORG_GRADLE_PROJECT_"

# Validation patterns
# Flutter pubspec version: major.minor[.patch][-prerelease][+build]
VERSION_NAME_PATTERN = r"^\d+\.\d+(?:\.\d+)?(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
PUBSPEC_VERSION_PATTERN = r"^(?P<name>[^+\s]+)(?:\+(?P<code>\d+))?$"
APPLICATION_ID_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*(?:\.[A-Za-z][A-Za-z0-9_]*)+$"

# Logging configuration
LOGGER_NAME = "flashbuild"
LOG_FILE_NAME = "flashbuild.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "FLASHBUILD_LOG_LEVEL"
