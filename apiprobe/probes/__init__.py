from apiprobe.probes.base import BaseProbe
from apiprobe.probes.brute_force import BruteForceProbe
from apiprobe.probes.info_disclosure import InfoDisclosureProbe
from apiprobe.probes.missing_auth import MissingAuthProbe
from apiprobe.probes.rate_limiting import RateLimitProbe
from apiprobe.probes.sql_injection import SQLInjectionProbe
